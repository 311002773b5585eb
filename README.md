# taskdesk

A small terminal application in which managers hand out tasks to workers,
and workers work through them while wandering a generated world map.

- **Accounts and tasks.** Users and assignments are kept in balanced
  (AVL) search trees, ordered by username and by assignment id. Both are
  saved to and loaded from plain comma-separated text files.
- **World map.** Up to five polygon-shaped countries are placed on a
  100×30 ocean and linked by double-lined routes along a minimum spanning
  tree (Kruskal).
- **Cities.** Every country holds a 70×30 city of building blocks joined
  by roads along a minimum spanning tree (Prim).
- **Houses.** Each city block has a 20×20 grid on which houses can be
  placed, listed, and wired together with an animated power grid
  (Kruskal), which can be traced back and disconnected again.

The package has no third-party dependencies.

## Modules

| Module | What it holds |
| --- | --- |
| `taskdesk.avl` | `AVLTree`, the self-balancing tree the other modules build on |
| `taskdesk.accounts` | `User`, `Assignment`, `Role`, `Status`, `UserDirectory`, `AssignmentBook`, `generate_random_id`, `format_assignment` |
| `taskdesk.terminal` | `getch`, `clear_screen`, `read_line` for raw keyboard input |
| `taskdesk.houses` | `House`, `Connection`, `Chunk`, `DisjointSet`, `house_id`, `kruskal_pairs`, `line_points` |
| `taskdesk.house_view` | `render_grid`, `animate_connect`, `animate_disconnect` and the interactive `placement_loop` |
| `taskdesk.city` | `City` generation and rendering, and the city `sandbox` |
| `taskdesk.world` | `World` and `Country` generation, rendering and `explore` |
| `taskdesk.game` | `AssignmentGame`, the worker's map-and-task screen |
| `taskdesk.menus` | `TaskConsole` with registration, login and the manager and worker menus |

## Keeping tasks

```python
from taskdesk.accounts import AssignmentBook

book = AssignmentBook()
book.create(4821, 1337, "Survey", "Walk the eastern district")
book.update_status(4821, "in-progress")

for assignment in book.for_user(1337):
    print(assignment.title, assignment.status.value)

book.save("assignments.txt")

restored = AssignmentBook()
restored.load("assignments.txt")
```

A status is one of `pending`, `in-progress` or `completed`; new
assignments start as `pending`, and any other status text raises
`ValueError`. `get` returns `None` for an unknown id, `delete` returns
whether the id existed, and `update_status` on an unknown id raises
`AssignmentNotFoundError`. Creating an id twice raises
`DuplicateAssignmentError`; adding a username that already exists to a
`UserDirectory` raises `DuplicateUsernameError`.

Files are written one record per line in key order:

```
userId,username,password,role
assignmentId,userId,title,description,status
```

`load` replaces the current contents and skips malformed lines, unknown
roles or statuses, and repeated keys. A missing file raises the usual
`FileNotFoundError`.

## Running the console

`TaskConsole` drives the whole program. Its input and output are passed
in, so it can run against a real terminal or be scripted:

```python
import random
import sys

from taskdesk.accounts import AssignmentBook, UserDirectory
from taskdesk.menus import TaskConsole
from taskdesk.terminal import getch, read_line

users = UserDirectory()
users.load("credentials.txt")
book = AssignmentBook()
book.load("assignments.txt")

console = TaskConsole(
    users, book,
    read_line, getch, sys.stdout,
    random.Random(),
    "credentials.txt", "assignments.txt",
)
console.login()
```

New accounts made with `register()` are workers with a random four-digit
id. Passwords are typed masked, key by key, and must contain at least one
upper-case letter and one digit (`is_valid_password`). Managers can
assign, list and delete tasks and save all data; workers can list and
update their own tasks or start an assignment, which opens the world map
with their tasks listed below it.

## Exploring

On the world map, `W`/`A`/`S`/`D` move the player along land and routes.
Walking into another country opens its city. In a city, `E` on a
building block opens its house grid, and `Q` leaves. On a house grid,
`Enter` places a house or shows the one under the cursor, `L` lists all
houses, `C` connects them with power lines, `X` disconnects them, and `Q`
goes back.

## What it does not do

- There is no command to run: the package installs no script. Start it
  from Python as shown above, choosing what to call (`register`, `login`)
  and when to load and save.
- Registration only makes workers. A manager account has to be added to
  a `UserDirectory` directly, or written with the role `manager` in the
  credentials file.
- Houses and power lines live only in memory; nothing in the package
  saves them to a file.

## Tests

The test suite uses pytest and lives in `tests/`.