"""Physics and sensor models for simulated air and underwater vehicles, with an autopilot socket link."""

__version__ = "0.1.0"
__all__ = ["common", "liftdrag", "wind", "uuv", "vision", "link"]