"""Shell completion scripts printed by ``branchlet completion``."""

from __future__ import annotations

SHELLS = ("bash", "zsh", "fish")

_BASH = """\
# branchlet bash completion
_branchlet_completions() {
  local cur prev
  cur="${COMP_WORDS[COMP_CWORD]}"
  prev="${COMP_WORDS[COMP_CWORD-1]}"

  if [ "$COMP_CWORD" -eq 1 ]; then
    COMPREPLY=($(compgen -W "create list delete settings setup completion --help --version --verbose" -- "$cur"))
    return 0
  fi

  case "${COMP_WORDS[1]}" in
    create)
      case "$prev" in
        -s|--source|-b|--branch)
          COMPREPLY=($(compgen -W "$(git for-each-ref --format='%(refname:short)' refs/heads 2>/dev/null)" -- "$cur"))
          return 0
          ;;
      esac
      COMPREPLY=($(compgen -W "--name -n --source -s --branch -b --help" -- "$cur"))
      ;;
    delete)
      case "$prev" in
        -p|--path)
          COMPREPLY=($(compgen -d -- "$cur"))
          return 0
          ;;
      esac
      COMPREPLY=($(compgen -W "--name -n --path -p --force -f --help" -- "$cur"))
      ;;
    list)
      COMPREPLY=($(compgen -W "--json --help" -- "$cur"))
      ;;
    completion)
      COMPREPLY=($(compgen -W "bash zsh fish" -- "$cur"))
      ;;
  esac
}
complete -F _branchlet_completions branchlet
"""

_ZSH = """\
#compdef branchlet
# branchlet zsh completion
_branchlet() {
  local -a commands
  commands=(
    'create:Create a new worktree'
    'list:List worktrees'
    'delete:Delete a worktree'
    'settings:Show and edit settings'
    'setup:Install shell integration'
    'completion:Print a shell completion script'
  )

  _arguments -C \\
    '(-h --help)'{-h,--help}'[Show help]' \\
    '(-v --version)'{-v,--version}'[Show version]' \\
    '--verbose[Enable debug logging]' \\
    '1: :->command' \\
    '*:: :->args'

  case $state in
    command)
      _describe 'command' commands
      ;;
    args)
      case $words[1] in
        create)
          _arguments \\
            '(-n --name)'{-n,--name}'[Worktree directory name]:name:' \\
            '(-s --source)'{-s,--source}'[Source branch]:branch:__git_branch_names' \\
            '(-b --branch)'{-b,--branch}'[New branch name]:branch:'
          ;;
        delete)
          _arguments \\
            '(-n --name)'{-n,--name}'[Worktree directory name]:name:' \\
            '(-p --path)'{-p,--path}'[Worktree path]:path:_directories' \\
            '(-f --force)'{-f,--force}'[Delete even with uncommitted changes]'
          ;;
        list)
          _arguments '--json[Output JSON]'
          ;;
        completion)
          _values 'shell' bash zsh fish
          ;;
      esac
      ;;
  esac
}
compdef _branchlet branchlet
"""

_FISH = """\
# branchlet fish completion
complete -c branchlet -f
complete -c branchlet -n '__fish_use_subcommand' -a create -d 'Create a new worktree'
complete -c branchlet -n '__fish_use_subcommand' -a list -d 'List worktrees'
complete -c branchlet -n '__fish_use_subcommand' -a delete -d 'Delete a worktree'
complete -c branchlet -n '__fish_use_subcommand' -a settings -d 'Show and edit settings'
complete -c branchlet -n '__fish_use_subcommand' -a setup -d 'Install shell integration'
complete -c branchlet -n '__fish_use_subcommand' -a completion -d 'Print a shell completion script'
complete -c branchlet -n '__fish_use_subcommand' -s h -l help -d 'Show help'
complete -c branchlet -n '__fish_use_subcommand' -s v -l version -d 'Show version'
complete -c branchlet -n '__fish_use_subcommand' -l verbose -d 'Enable debug logging'
complete -c branchlet -n '__fish_seen_subcommand_from create' -s n -l name -r -d 'Worktree directory name'
complete -c branchlet -n '__fish_seen_subcommand_from create' -s s -l source -r -a '(__fish_git_branches)' -d 'Source branch'
complete -c branchlet -n '__fish_seen_subcommand_from create' -s b -l branch -r -d 'New branch name'
complete -c branchlet -n '__fish_seen_subcommand_from delete' -s n -l name -r -d 'Worktree directory name'
complete -c branchlet -n '__fish_seen_subcommand_from delete' -s p -l path -r -F -d 'Worktree path'
complete -c branchlet -n '__fish_seen_subcommand_from delete' -s f -l force -d 'Delete even with uncommitted changes'
complete -c branchlet -n '__fish_seen_subcommand_from list' -l json -d 'Output JSON'
complete -c branchlet -n '__fish_seen_subcommand_from completion' -a 'bash zsh fish'
"""

_SCRIPTS = {"bash": _BASH, "zsh": _ZSH, "fish": _FISH}

SETUP_HELP = """\
Print a completion script for your shell and load it from your shell config:

  bash: branchlet completion bash >> ~/.bashrc
  zsh:  branchlet completion zsh > "${fpath[1]}/_branchlet"
  fish: branchlet completion fish > ~/.config/fish/completions/branchlet.fish
"""


def completion_script(shell: str) -> str:
    try:
        return _SCRIPTS[shell]
    except KeyError:
        raise ValueError(f"Unsupported shell '{shell}'. Supported shells: {', '.join(SHELLS)}") from None


__all__ = ["SHELLS", "SETUP_HELP", "completion_script"]
