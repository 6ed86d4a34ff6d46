"""docthumb: thumbnails for documents in a content graph."""
