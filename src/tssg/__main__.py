from tssg.cli import app

app()
