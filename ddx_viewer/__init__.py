"""DDX Viewer - converts DirectX textures with an external converter and shows them."""

__version__ = "1.0.0"
