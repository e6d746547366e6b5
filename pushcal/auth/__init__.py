"""Calendar subscription tokens."""
