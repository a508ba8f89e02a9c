"""Panel state machine and its customtkinter presentation."""
