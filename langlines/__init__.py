"""Lang-Lines: a bilingual tile-grid word puzzle."""
