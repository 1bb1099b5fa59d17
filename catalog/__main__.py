from catalog.main import app

app(prog_name="catalog")
