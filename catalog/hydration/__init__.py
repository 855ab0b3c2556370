# Hydration package.
#
# Turns flat child-table rows into nested aggregates in a fixed number of
# round trips, whatever the number of parents:
#
#   grouping : pure partition of rows into parent-id keyed lists
#   loaders  : one batched ``IN`` query per relation kind
#   pricing  : two-stage tier → tier-feature resolution
#   builders : pure assembly of one aggregate from the grouped maps
#
# Only the loaders (and the pricing resolver built on them) suspend; the
# grouping and builder functions are synchronous and do no I/O.
