# Data services module
from sonic_staking.services.data.graphql_client import GraphQLClient, GraphQLClientError

__all__ = ["GraphQLClient", "GraphQLClientError"]
