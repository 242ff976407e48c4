"""
Example gallery web application.

Uploads images as private, lists them with a public and a signed url, and
toggles the privacy of every uploaded image. Images are kept in memory.

Usage:
    OSPRY_SECRET=sk-... python -m ospry gallery --port 3000
"""

import logging
from typing import List, Optional

from bottle import Bottle, HTTPResponse, redirect, request, run, template

from .client import Ospry
from .errors import APIError
from .image_metadata import ImageMetadata


INDEX_PAGE = """<!doctype html>
<html>
<head><title>Ospry gallery</title></head>
<body>
  <h1>Upload images</h1>
  <form action="/images" method="post" enctype="multipart/form-data">
    <input type="file" name="images" multiple accept="image/*">
    <input type="submit" value="Upload">
  </form>
  <p><a href="/images">View gallery</a></p>
</body>
</html>
"""

GALLERY_TEMPLATE = """<!doctype html>
<html>
<head><title>Ospry gallery</title></head>
<body>
  <form action="/togglePrivate" method="post">
    <input type="submit" value="Toggle privacy">
  </form>
  <h2>Public urls</h2>
  % for url in public:
  <img src="{{url}}">
  % end
  <h2>Signed urls (30 seconds)</h2>
  % for url in signed:
  <img src="{{url}}">
  % end
</body>
</html>
"""

GALLERY_MAX_HEIGHT = 150
SIGNED_URL_SECONDS = 30


class ImageStore:
    """In-memory list of uploaded images."""

    def __init__(self):
        self.urls: List[str] = []
        self.ids: List[str] = []

    def __len__(self) -> int:
        return len(self.ids)

    def push(self, metadata: ImageMetadata) -> None:
        self.urls.append(metadata.url)
        self.ids.append(metadata.id)


def error_response(error: APIError) -> HTTPResponse:
    status = error.status_code if error.status_code >= 400 else 502
    return HTTPResponse(status=status, body=error.message)


def create_app(
    client: Ospry,
    store: Optional[ImageStore] = None,
    logger: Optional[logging.Logger] = None
) -> Bottle:
    """Build the gallery application around an Ospry client."""
    app = Bottle()
    store = store if store is not None else ImageStore()
    logger = logger or logging.getLogger(__name__)
    app.store = store

    @app.route('/')
    def index():
        return INDEX_PAGE

    @app.route('/images')
    def images():
        if not len(store):
            return 'No images uploaded yet'
        public = [client.format_url(url, max_height=GALLERY_MAX_HEIGHT) for url in store.urls]
        signed = [
            client.format_url(
                url,
                expire_after_seconds=SIGNED_URL_SECONDS,
                max_height=GALLERY_MAX_HEIGHT,
            )
            for url in store.urls
        ]
        return template(GALLERY_TEMPLATE, public=public, signed=signed)

    @app.route('/images', method='POST')
    def upload_images():
        for _, upload in request.files.allitems():
            try:
                metadata = client.upload(upload.raw_filename, upload.file, is_private=True)
            except APIError as e:
                logger.error(f"Error with upload of {upload.raw_filename}: {e}")
                return error_response(e)
            logger.info(f"Upload success: {metadata.id} {metadata.url}")
            store.push(metadata)
        redirect('/images')

    @app.route('/togglePrivate', method='POST')
    def toggle_private():
        if len(store):
            try:
                first = client.get_metadata(store.ids[:1])[0]
                if first.is_private:
                    client.make_public(list(store.ids))
                else:
                    client.make_private(list(store.ids))
            except APIError as e:
                logger.error(f"Could not toggle privacy: {e}")
                return error_response(e)
        redirect('/images')

    return app


def run_gallery(client: Ospry, host: str = 'localhost', port: int = 3000) -> None:
    app = create_app(client)
    logging.getLogger(__name__).info(f"Ospry gallery listening on {host}:{port}")
    run(app=app, host=host, port=port)
