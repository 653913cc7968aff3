"""Wire models for the bladder diary."""
