"""Rule sets bundled with retryrules."""
