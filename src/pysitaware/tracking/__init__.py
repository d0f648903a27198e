"""Track layer.

Per-asset position histories and the registry that routes incoming reports
to them.
"""
