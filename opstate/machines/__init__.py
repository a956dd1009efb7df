"""
The three machine kinds: read (fetch), write (post) and generalized request.
"""
