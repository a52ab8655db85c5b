"""ERP snapshot tables -- acquisitions, building proposals, letters of intent.

These tables mirror the ERP verbatim and are rebuilt from scratch on every
sync pass; nothing local is ever stored in them.
"""
