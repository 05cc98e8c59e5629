"""Pure domain core: calendar, roles, clock and DTOs (zero I/O)."""
