from app.vcms import create_app

app = create_app()
