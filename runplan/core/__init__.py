"""Core application plumbing: settings, logging, exceptions."""
