"""Dramatiq workers for background delivery."""
