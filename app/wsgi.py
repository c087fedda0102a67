from app.skywriter import create_app

app = create_app()
