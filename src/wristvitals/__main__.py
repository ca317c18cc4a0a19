"""Run the wristvitals CLI: python -m wristvitals."""

from wristvitals.cli import main

if __name__ == "__main__":
	main()
