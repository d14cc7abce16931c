"""Book-shelf organizer: enrich, sort and tidy bookmark folders and tabs."""
