# Services package.
#
# Each module exposes a focused set of async functions for one aggregate:
#
#   service_catalog : read pipeline for Service (all / by slug / by category)
#   service_admin   : paginated admin listing + create / replace / delete
#   blog_catalog    : published posts with author, category and tags
#   gallery_catalog : available gallery images with their groups
#
# Read functions take a ``QueryEngine`` and return an ``Envelope``; they
# never raise for not-found or storage failures.  Write functions take an
# AsyncSession so that the router layer controls the transaction boundary
# via the ``get_db`` dependency.
