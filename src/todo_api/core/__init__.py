# Request-independent logic:
# - results returned by every service operation
# - token issuing/verification and password hashing
# - pagination, sorting and search of list endpoints
