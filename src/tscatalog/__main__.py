from tscatalog.cli import app

app()
