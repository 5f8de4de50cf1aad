"""Pure state mutations.

Every operation takes a State and returns a new one inside an OpResult; the
input tree is never modified, so callers can chain several operations and
write the document back once.
"""
