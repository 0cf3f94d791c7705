"""cceasy: model provider switcher for the Claude Code CLI."""

__version__ = "0.3.0"
