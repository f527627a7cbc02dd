"""Remote database operators for sfscan."""
