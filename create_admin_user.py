from ems_api import create_app
from ems_api.extensions import db
from ems_api.services import admin_store

app = create_app()

with app.app_context():
    username = "admin"
    email = "admin@ems.local"
    password = "password"

    a = admin_store.find_active_by_username(username)
    if not a:
        print(f"Creating admin {username}...")
        a = admin_store.create(username, password, email, "Admin User")
    else:
        print(f"Admin {username} already exists. Resetting password...")
        a.set_password(password)

    db.session.commit()
    print("Admin user ready.")
