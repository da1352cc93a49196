"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "login", "ls", "info", "mkdir", "put", "get", "mv", "cp",
    "rename", "rm", "share", "clear", "exit", "help",
]

STYLE = Style.from_dict(
    {
        "prompt": "#FF6A00 bold",
        "command": "#0088ff bold",
    }
)

ORANGE = "\033[38;2;255;106;0m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{ORANGE}
    _    _     ___ ____  ____  _____     _______
   / \\  | |   |_ _|  _ \\|  _ \\|_ _\\ \\   / / ____|
  / _ \\ | |    | || | | | |_) || | \\ \\ / /|  _|
 / ___ \\| |___ | || |_| |  _ < | |  \\ V / | |___
/_/   \\_\\_____|___|____/|_| \\_\\___|  \\_/  |_____|
{RESET}"""

WELCOME_TITLE = "alidrive - cloud drive shell with rapid upload"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "alidrive> "

SHARE_URL_PREFIX = "https://www.aliyundrive.com/s/"

HELP_TEXT = """Available commands:
  login <refresh_token>                 Save refresh token and connect
  ls [path]                             List a drive folder (default /)
  info                                  Show used and total space
  mkdir <path>                          Create a folder and any missing parents
  put <local_file> [remote_dir]         Upload a file (rapid upload when possible)
  get <remote_path> [local_path]        Download a file
  mv <path> <dst_dir> [new_name]        Move a file or folder
  cp <path> <dst_dir> [new_name]        Copy a file or folder
  rename <path> <new_name>              Rename a file or folder
  rm <path>                             Move a file or folder to the recycle bin
  share <path> [password] [days]        Create a share link
  clear                                 Clear screen and redisplay welcome message
  help                                  Show this help
  exit                                  Exit REPL

Examples:
  login 0123456789abcdef
  mkdir /backup/2024
  put report.pdf /backup/2024
  get /backup/2024/report.pdf downloaded.pdf
  mv /backup/2024/report.pdf /archive
  share /archive/report.pdf secret 7"""
