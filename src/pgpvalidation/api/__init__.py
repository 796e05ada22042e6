"""HTTP confirmation listener."""
