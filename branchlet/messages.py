"""User-facing strings shared by the menu and the CLI."""

WELCOME = "Branchlet - Git Worktree Manager"

MENU_TITLE = "What would you like to do?"
MENU_CREATE = "Create new worktree"
MENU_LIST = "List worktrees"
MENU_DELETE = "Delete worktree"
MENU_SETTINGS = "Settings"
MENU_SETUP = "Shell integration"
MENU_EXIT = "Exit"

CREATE_DIRECTORY_PROMPT = "Directory name for the new worktree:"
CREATE_SOURCE_BRANCH_PROMPT = "Select source branch:"
CREATE_CUSTOM_REF = "Enter a commit, tag or ref…"
CREATE_CUSTOM_REF_PROMPT = "Commit, tag or ref:"
CREATE_NEW_BRANCH_PROMPT = "New branch name (leave empty to use the source branch):"
CREATE_CONFIRM = "Create this worktree?"
CREATE_CREATING = "Creating worktree..."
CREATE_COPYING = "Copying files..."
CREATE_OPENING_TERMINAL = "Opening terminal..."
CREATE_SUCCESS = "Worktree created successfully!"

DELETE_SELECT_PROMPT = "Select worktree to delete:"
DELETE_CONFIRM = "Delete this worktree? This action cannot be undone."
DELETE_FORCE_CONFIRM = "The worktree has uncommitted changes. Delete it anyway?"
DELETE_SUCCESS = "Worktree deleted successfully!"
DELETE_NOTHING = "No worktrees available to delete."

LIST_TITLE = "Git Worktrees"
LIST_NO_WORKTREES = "No additional worktrees found."
LIST_MAIN_INDICATOR = "(main)"
LIST_DIRTY_INDICATOR = "(dirty)"
LIST_ACTION_PROMPT = "What would you like to do with this worktree?"
LIST_NAVIGATE = "Navigate to directory"
LIST_OPEN_TERMINAL = "Open in terminal"
LIST_BACK = "Back"

SETTINGS_TITLE = "Configuration"
SETTINGS_RESET = "Reset global settings to defaults"
SETTINGS_RESET_CONFIRM = "Reset the global settings file to defaults?"
SETTINGS_TOGGLE_DELETE_BRANCH = "Toggle deleting branches with worktrees"
SETTINGS_TOGGLE_REMOTE = "Toggle showing remote branches"

SETUP_INSTALLED = "Shell integration is installed in {path}."
SETUP_NOT_INSTALLED = "Shell integration is not installed ({reason})."
SETUP_INSTALL_CONFIRM = "Add the branchlet wrapper function to {path}?"
SETUP_REMOVE_CONFIRM = "Remove the branchlet wrapper function from {path}?"
SETUP_DONE = "Done. Restart your shell or run: source {path}"
SETUP_UNSUPPORTED = "Shell integration supports zsh and bash only."

UPDATE_AVAILABLE = "Update available: {current} → {latest}. Run: pip install -U branchlet"
