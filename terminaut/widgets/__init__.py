"""GTK widgets. Imported on demand; they require Gtk 4 and Vte."""
