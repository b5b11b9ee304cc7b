"""Language backends, one package per target language."""
