"""Buildings module -- the locally-owned building table and its repository.

Building rows carry ERP-owned columns (overwritten by every sync pass) and
user-owned columns (sellable, connectivity, resource_type) that only the
end-user update operation may write.
"""
