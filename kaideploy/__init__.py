"""Package a web app directory and install it on a device through its debugger socket."""

__version__ = "0.1.0"
