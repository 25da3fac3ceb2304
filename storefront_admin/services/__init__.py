"""External collaborators: the row store and the identity provider."""
