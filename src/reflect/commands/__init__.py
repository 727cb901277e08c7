"""Built-in CLI commands for reflect (``call`` and the ``profile`` group)."""
