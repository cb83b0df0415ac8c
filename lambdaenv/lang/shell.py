"""Handles interactive/command-line mode for the lambdaenv interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """Lambda calculus interpreter shell."""
    intro = "lambdaenv :: lambda calculus with closures\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continutations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations
    COMMANDS = ("help", "exit", "EOF")

    def __init__(self, sess, verbose=False, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self.verbose = verbose
        self._tmp_line = ""

    def onecmd(self, line):
        """Only a bare 'help', '?' or 'exit' (or end of input) is a command. Any other line, e.g. 'exit x', is a
        program, even if it starts with a command name.
        """
        command, arg, line = self.parseline(line)
        if line == "EOF" or (not self._tmp_line and command in Shell.COMMANDS and not arg):
            return super().onecmd(line)
        elif not line and not self._tmp_line:
            return self.emptyline()
        return self.default(line)

    def default(self, line):
        """Runs an arbitrary program."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            line, add_to_prev = self.sess.preprocess_line(line, self._tmp_line)

            if add_to_prev:
                self._tmp_line = line
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            self.sess.add(line)
            self.sess.run()

            if self.sess.results:
                print(self.sess.pop(self.verbose))

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to lambdaenv!\n\n"
              "Every line is a program in the untyped lambda calculus: names, '(' ')' for \n"
              "grouping and '\\' to start a lambda. A lambda's body runs to the end of its \n"
              "group, so '\\x x y' is '\\x (x y)'. Application associates to the left.\n\n"
              "Try it out by typing '(\\x x) (\\y y)'. The identity function is applied to \n"
              "itself, giving '\\y y' as the result.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
