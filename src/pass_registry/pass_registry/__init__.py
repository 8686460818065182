"""Airport pass registry package.

Organized by feature modules (users, passes, imports, assets) with a thin Flask
controller layer over service/repository layers.
"""
