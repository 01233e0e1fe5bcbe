# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single aggregate:
#
#   article_service    denormalised reads + transactional writes for Article
#   category_service   list / create for Category
#   file_service       upload storage and lookup for File
#   user_service       registration, login and profile for User
#
# All service functions accept an AsyncSession as their first argument.
# Multi-table writes commit through ``app.database.unit_of_work`` so each
# one is atomic on its own; the ``get_db`` dependency closes the session.
