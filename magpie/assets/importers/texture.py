# magpie/assets/importers/texture.py
import io

from PIL import Image

from magpie.assets.importers.base import AssetImporter
from magpie.assets.importers.data import TextureData


class TextureImporter(AssetImporter):
    def import_bytes(self, data: bytes, name: str) -> TextureData:
        with Image.open(io.BytesIO(data)) as img:
            converted = img.convert("RGBA")

            width, height = converted.size
            pixels = converted.tobytes()

        return TextureData(data=pixels, width=width, height=height, components=4)
