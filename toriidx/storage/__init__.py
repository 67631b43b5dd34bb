"""Storage backends, in memory and in SQLite, for component and entity data."""