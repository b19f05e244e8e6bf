"""Local operator scripts (run with python -m scripts.<name>)."""
