import os

from . import create_app

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", "8080"))
    app.logger.info("Server started at http://localhost:%s", port)
    app.run(host="0.0.0.0", port=port)
