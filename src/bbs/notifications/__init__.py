"""Per-user notifications: system announcements, replies and quotes."""
