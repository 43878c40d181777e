from flotilla import *


class Scaffold(Group):
    """
    Create a project skeleton, then run the optional groups it selects.
    """

    name = Argument("string", descr="Project name")
    into = Option("string", ".", descr="Parent directory")
    license = Option("choice", "mit", choices=("mit", "apache"), descr="License to write")
    tests = Option("boolean", True, invokes="test_suite", descr="Generate a test suite")

    @task
    def layout(self):
        self.reporter.say_status("create", "%s/%s/" % (self.into, self.name))

    @task
    def notice(self):
        self.reporter.say_status("create", "%s/%s/LICENSE (%s)" % (self.into, self.name, self.license))

    suite = option_invocation("tests")


class TestSuite(Group):
    into = Option("string", ".")

    @task
    def tests(self):
        self.reporter.say_status("create", "%s/test/" % self.into)


if __name__ == '__main__':
    Scaffold.start(context=Context(shell=True))
