# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and store access for one record type:
#
#   service_repository: CRUD + category listing for Service
#   stats_service: concurrent aggregate snapshot over Service
#   task_service: CRUD for Task
#
# Functions that touch a single record accept an AsyncSession as their
# first argument so that the router layer controls the transaction
# boundary via the ``get_db`` dependency.  The stats snapshot takes a
# session factory instead, because each reduction runs in its own session.
