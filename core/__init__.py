"""
Core modules for Circle Crop

- compositor: Compositor, composite(), composite_async()
- encoded_image: EncodedImage (releasable result handle)
- exceptions: DecodeError, InvalidRectError, EncodeError, SessionStateError
- image: Raster and the converters/geometry/processors behind the pipeline
- object_urls: ObjectURLRegistry for blob: handles
- settings_store: CropSettingsStore

Submodules are imported directly (``from core.compositor import Compositor``);
this package does not re-export them because ``schemas`` depends on
``core.enums`` and ``core.constants``.
"""
