"""crateship - signed precompiled binary distribution for Rust crates."""

__version__ = "0.1.0"
