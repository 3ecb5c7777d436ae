"""Quillboard: admin status-change approval workflow for a blogging platform."""

__version__ = "0.1.0"
