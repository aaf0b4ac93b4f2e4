"""GraphQL documents sent to the Monday API."""

GET_BOARD_QUERY = """
query ($board_ids: [ID!]) {
  boards (ids: $board_ids) {
    name
    state
    board_folder_id
    owners {
      id
    }
    groups {
      id
    }
    items_page {
      items {
        id
      }
    }
  }
}
"""

BOARDS_PAGE_SIZE = 500
ITEMS_PAGE_SIZE = 500

GET_BOARD_NAMES_QUERY = """
query ($limit: Int, $page: Int) {
  boards (limit: $limit, page: $page) {
    id
    name
  }
}
"""

GET_BOARD_ITEMS_QUERY = """
query ($board_ids: [ID!], $limit: Int) {
  boards (ids: $board_ids) {
    name
    items_page (limit: $limit) {
      cursor
      items {
        id
        name
        column_values {
          id
          type
          value
          column {
            title
          }
        }
      }
    }
  }
}
"""

GET_NEXT_ITEMS_PAGE_QUERY = """
query ($cursor: String!, $limit: Int) {
  next_items_page (cursor: $cursor, limit: $limit) {
    cursor
    items {
      id
      name
      column_values {
        id
        type
        value
        column {
          title
        }
      }
    }
  }
}
"""

GET_COLUMNS_QUERY = """
query ($board_ids: [ID!]) {
  boards (ids: $board_ids) {
    owners {
      id
    }
    columns {
      id
      title
      type
    }
  }
}
"""

GET_GROUPS_QUERY = """
query ($board_ids: [ID!], $group_ids: [String]) {
  boards (ids: $board_ids) {
    groups (ids: $group_ids) {
      title
      color
      position
    }
  }
}
"""

GET_ITEMS_QUERY = """
query ($item_ids: [ID!]) {
  items (ids: $item_ids) {
    name
  }
}
"""

GET_ITEM_COLUMN_VALUES_QUERY = """
query ($item_ids: [ID!]) {
  items (ids: $item_ids) {
    column_values {
      id
      value
      column {
        title
      }
    }
  }
}
"""

CREATE_ITEM_MUTATION = """
mutation ($board_id: ID!, $group_id: String, $item_name: String!) {
  create_item (board_id: $board_id, group_id: $group_id, item_name: $item_name) {
    id
  }
}
"""

CREATE_UPDATE_MUTATION = """
mutation ($item_id: ID!, $body: String!) {
  create_update (item_id: $item_id, body: $body) {
    id
  }
}
"""

CHANGE_COLUMN_VALUES_MUTATION = """
mutation ($board_id: ID!, $item_id: ID!, $column_values: JSON!) {
  change_multiple_column_values (board_id: $board_id, item_id: $item_id, column_values: $column_values) {
    id
  }
}
"""

CREATE_WEBHOOK_MUTATION = """
mutation ($board_id: ID!, $url: String!, $event: WebhookEventType!, $config: JSON) {
  create_webhook (board_id: $board_id, url: $url, event: $event, config: $config) {
    id
    board_id
  }
}
"""

DELETE_WEBHOOK_MUTATION = """
mutation ($id: ID!) {
  delete_webhook (id: $id) {
    id
    board_id
  }
}
"""
