"""Speech capture and output: accumulation, endpointing, gating and providers."""
