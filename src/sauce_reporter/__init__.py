"""sauce-reporter: upload browser test results to Sauce Labs."""

__version__ = "0.3.0"
