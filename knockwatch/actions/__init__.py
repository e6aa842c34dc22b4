"""Actions run for matched knock rules."""
