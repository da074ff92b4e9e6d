"""Encyclopedia and video reference helpers."""
