"""Clinic API: catalog reads and appointment booking over a relational clinic schema."""
