"""MyPlanner: weekly course schedule with odd/even week online/onsite rotation."""
