"""Source root for the planetary climate simulation packages."""
