"""Domain layer - pure value objects, statuses, money and clock.  Zero I/O."""
