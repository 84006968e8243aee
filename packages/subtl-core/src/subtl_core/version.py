"""Package version for subtl."""

VERSION = "0.1.0"
