"""Install the Stencila CLI in CI, run a command and publish what it produced."""

__version__ = "0.1.0"
