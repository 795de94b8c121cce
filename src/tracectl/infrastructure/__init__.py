"""Infrastructure layer — traversal graph, dataset files, session storage."""
