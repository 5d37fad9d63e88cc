from graphql import build_schema

# Small schema served by the demo app
schema = build_schema(
    """
    type Query {
      hello(name: String): String!
      viewer: String
    }

    type Mutation {
      echo(message: String!): String!
    }
    """
)


class Root:
    def hello(self, info, name=None):
        return "world" if name is None else f"hello {name}"

    def viewer(self, info):
        # Filled in by the per-request options function
        return info.context.get("user_agent")

    def echo(self, info, message):
        return message


root_value = Root()
