"""Wire protocol for installing packaged apps over a remote debugger socket."""
