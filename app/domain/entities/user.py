from pydantic import BaseModel


"""
User Entity:
1. id (str): Unique identifier for the user. Cannot be None.
User management lives outside this service, only the id is needed to scope caches and history.
"""
class User(BaseModel):
    id: str
