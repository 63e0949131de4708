"""Restaurant models, SQLite storage and use cases."""