"""Application – the append protocol and its collaborators."""
