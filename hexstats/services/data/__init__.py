"""Data sources: persistent store, remote subgraphs, live feed."""
