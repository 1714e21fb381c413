"""Core building blocks: settings, models, decoding, errors and diagnostics."""
