"""Query models, root query resolver and HTTP server for indexed world data."""