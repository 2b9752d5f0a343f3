"""Pure image and narrative helpers with no infrastructure imports."""
