# ems_api/wsgi.py
import os

from ems_api import create_app

app = create_app(os.getenv("EMS_CONFIG_OBJECT") or None)

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
