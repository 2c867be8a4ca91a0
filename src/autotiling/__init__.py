"""Toggle the window manager's tiling direction when windows get too narrow."""
